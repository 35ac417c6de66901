# Description: Constants used throughout the package

# Radiocarbon ages are reported in years before this calendar year (AD)
BP_REFERENCE_YEAR = 1950

# Calibrated age grids keep only years whose probability exceeds this floor
PROBABILITY_FLOOR = 1e-5

# Degrees of freedom of the Student-t likelihood used when convolving
# a radiocarbon date with a terrestrial calibration curve
T_DOF = 100

# Number of points used to draw fitted normal densities
DENSITY_POINTS = 500

# Column layout of the statistics table produced for a batch of samples
STAT_COLUMNS = ['mean', 'median', 'sd', 'ci_low', 'ci_high', 'p_value']

# Number of rows expected per data column for each input convention
SHELL_ROWS = 3
PAIR_ROWS = 4

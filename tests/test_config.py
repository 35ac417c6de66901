import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from deltar import config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, 'config.yaml')

    def tearDown(self):
        shutil.rmtree(self.temp_dir)
        config.load_config(reload=True)

    def test_defaults_without_file(self):
        with patch.dict(os.environ, {'DELTAR_CONFIG': self.path}):
            cfg = config.load_config(reload=True)
        self.assertEqual(cfg['iterations'], 10_000)
        self.assertEqual(cfg['confidence_level'], 0.95)
        self.assertEqual(cfg['reservoir_curve'], 'marine13')
        self.assertEqual(cfg['probability_floor'], 1e-5)

    def test_file_overrides_defaults(self):
        with open(self.path, 'w') as f:
            f.write("deltar:\n"
                    "  iterations: 500\n"
                    "  terrestrial_curves: [intcal20]\n"
                    "  curve_urls:\n"
                    "    intcal20: https://example.org/intcal20.14c\n")
        with patch.dict(os.environ, {'DELTAR_CONFIG': self.path}):
            config.load_config(reload=True)
            self.assertEqual(config.get_option('iterations'), 500)
            self.assertEqual(config.get_option('terrestrial_curves'), ['intcal20'])
            urls = config.get_option('curve_urls')
        # nested dicts are merged, not replaced
        self.assertIn('marine13', urls)
        self.assertEqual(urls['intcal20'], 'https://example.org/intcal20.14c')
        self.assertEqual(config.get_option('confidence_level'), 0.95)

    def test_mutating_loaded_config_leaves_defaults_intact(self):
        with patch.dict(os.environ, {'DELTAR_CONFIG': self.path}):
            cfg = config.load_config(reload=True)
            cfg['terrestrial_curves'].append('bogus')
            cfg['curve_urls']['bogus'] = 'https://example.org/bogus.14c'
            fresh = config.load_config(reload=True)
        self.assertEqual(fresh['terrestrial_curves'], ['intcal13', 'shcal13'])
        self.assertNotIn('bogus', fresh['curve_urls'])

    def test_empty_section(self):
        with open(self.path, 'w') as f:
            f.write("deltar:\n")
        with patch.dict(os.environ, {'DELTAR_CONFIG': self.path}):
            cfg = config.load_config(reload=True)
        self.assertEqual(cfg['iterations'], 10_000)

    def test_cached(self):
        self.assertIs(config.load_config(), config.load_config())


if __name__ == '__main__':
    unittest.main()

import configparser
import logging
import os

from default import DEFAULT

LOGGER = logging.getLogger(__name__)


class Config:
    def __init__(self, config_dir=None, config_base_name="config"):
        self.config = self.load_config(config_dir, config_base_name)
        self.database_path = self.get_string('general', 'database_path', DEFAULT.database_path)
        self.directory_path = os.path.expanduser(
            self.get_string('general', 'directory_path', DEFAULT.directory_path)
        )
        self.default_point_value = self.get_float('general', 'default_point_value', DEFAULT.default_point_value)
        self.auto_refresh_ms = self.get_int('dashboard', 'auto_refresh_ms', DEFAULT.auto_refresh_ms)
        self.logging_level = self.get_string('logging', 'level', DEFAULT.logging_level)
        self.point_values = self.load_point_values()

    def load_config(self, config_dir=None, config_base_name="config"):
        config = configparser.ConfigParser()
        # keep instrument symbols as written (MNQ, not mnq)
        config.optionxform = str

        # use app directory as config directory
        if config_dir is None:
            config_dir = os.path.dirname(os.path.abspath(__file__))
        default_config_path = os.path.join(config_dir, f"{config_base_name}.ini")
        config.read(default_config_path)

        env = os.environ.get("CONFIG_ENV")
        if env:
            env_config_path = os.path.join(config_dir, f"{config_base_name}.{env}.ini")
            if os.path.exists(env_config_path):
                config.read(env_config_path)
                LOGGER.info("Loaded configuration for environment: %s", env)
            else:
                LOGGER.warning(
                    "Environment '%s' specified, but config file '%s' not found. Using default.",
                    env,
                    env_config_path,
                )

        return config

    def load_point_values(self):
        point_values = dict(DEFAULT.point_values)
        if self.config.has_section('point_values'):
            for instrument, value in self.config.items('point_values'):
                try:
                    point_values[instrument.upper()] = float(value)
                except ValueError:
                    LOGGER.warning("Invalid point value '%s' for instrument '%s'; ignoring", value, instrument)
        return point_values

    def get_point_value(self, instrument=None):
        """Currency value of one point for the instrument, falling back to the default point value."""
        symbol = (instrument or "").upper()
        return self.point_values.get(symbol, self.default_point_value)

    def configure_logging(self):
        level = getattr(logging, self.logging_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )

    def get_bool(self, section, option, default=False):
        """Safely retrieves a boolean value from the configuration."""
        try:
            value_str = self.config.get(section, option)
            if value_str.lower() in ('true', 'yes', 'on', '1'):
                return True
            elif value_str.lower() in ('false', 'no', 'off', '0'):
                return False
            else:
                LOGGER.warning("Invalid boolean value '%s' for '%s.%s'. Using default: %s", value_str, section, option, default)
                return default
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, option, default=0):
        try:
            return self.config.getint(section, option)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_float(self, section, option, default=0.0):
        try:
            return self.config.getfloat(section, option)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_string(self, section, option, default=""):
        try:
            return self.config.get(section, option)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

"""
Configuration-related constants and resource limits.
"""

# Maximum config file size (10MB)
MAX_CONFIG_SIZE_BYTES = 10 * 1024 * 1024

# Maximum nesting of include directives
MAX_INCLUDE_DEPTH = 10

# Environment variables selecting the configuration source
CONF_DIR_ENV = "CONF_DIR"
CONF_FILE_ENV = "CONF_FILE"

DEFAULT_CONF_DIRNAME = "conf"
DEFAULT_CONF_FILENAME = "config.properties"

# Key of the include directive in properties files
INCLUDE_KEY = "include"

YAML_SUFFIXES = (".yaml", ".yml")

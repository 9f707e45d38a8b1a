"""
Configuration constants to replace magic numbers throughout Hydrolang
"""

import os
import tempfile

# Network defaults
DEFAULT_RAINFALL = 1.0  # mm; applies until a rainfall declaration overrides it

# Units used when reporting
RAINFALL_UNITS = "mm"
FLOW_RATE_UNITS = "L/s per mm"
OUTFLOW_UNITS = "L/s"

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "hydrolang_parser.cache")
GRAMMAR_FILE_NAME = "grammar.lark"

# Source files
SOURCE_FILE_EXTENSION = ".hyd"
DEFAULT_SOURCE_NAME = "main.hyd"
DEFAULT_FILE_ENCODING = "utf-8"

# Literal constants
STRING_QUOTE_CHAR = '"'
BOOLEAN_TRUE_LITERAL = "true"
BOOLEAN_FALSE_LITERAL = "false"
NIL_LITERAL = "nil"

# Numeric encoding of logical results
TRUE_VALUE = 1.0
FALSE_VALUE = 0.0

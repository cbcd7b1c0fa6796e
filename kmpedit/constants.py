"""
Constants used across the kmpedit modules.

Consolidates format magic numbers so that codecs and the topology engine
agree on them.
"""

# KMP header
KMP_MAGIC = b"RKMD"
KMP_SECTION_COUNT = 15
KMP_HEADER_LENGTH = 0x4C
# Version written by Nintendo tracks (2520)
KMP_DEFAULT_VERSION = 0x9D8

# Section names in on-disk order
KMP_SECTION_NAMES = (
    "KTPT", "ENPT", "ENPH", "ITPT", "ITPH", "CKPT", "CKPH",
    "GOBJ", "POTI", "AREA", "CAME", "JGPT", "CNPT", "MSPT", "STGI",
)

# Path group limits (hardware limit of the target format)
MAX_GROUP_LINKS = 6
GROUP_SENTINEL = 0xFF
MAX_U8_INDEX = 0xFF

# "No route" markers in holder records
NO_ROUTE_U8 = 0xFF
NO_ROUTE_U16 = 0xFFFF

# Checkpoint prev/next "none" marker
CHECKPOINT_NO_LINK = 0xFF

# KCL
KCL_PRISM_TABLE_SKEW = 0x10  # prism table starts this far past its stated offset
KCL_PRISM_SIZE = 0x10
KCL_FLAG_TYPE_MASK = 0x1F
KCL_TYPE_COUNT = 32

"""
KMP/KCL course data engine.

Reads and writes KMP course files byte-exactly, decodes KCL collision
geometry, and exposes enemy/item/checkpoint/route paths as editable graphs.

Packages:
- utils: logging and big-endian binary primitives
- parsers: KMP section/record codecs and the KCL decoder
- paths: path topology engine (graphs, group flattening, routes, checkpoints)
- course: course model and editing session
- config: editor configuration (kmpedit.ini)
"""

__version__ = "0.4.0"

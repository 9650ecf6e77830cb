"""Provide package metadata for `MaterialBrew`."""

import logging as _logging

__version__ = "0.3.0"
_logging.getLogger("material_pipeline").addHandler(_logging.NullHandler())

__all__ = ["__version__"]

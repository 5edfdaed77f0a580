"""Process groups and collective operations."""

from .collective import *

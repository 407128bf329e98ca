# -*- coding: utf-8 -*-
"""Provider/model configuration editor and deployment exporter."""

__version__ = "0.1.0"

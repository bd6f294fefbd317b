# -*- coding: utf-8 -*-
"""fittrack — personal diet and fitness tracker backend."""

__version__ = "1.0.0"

# -*- coding: utf-8 -*-
"""Finanzas Sabias API: subscription-gated personal finance backend."""

__version__ = "1.0.0"

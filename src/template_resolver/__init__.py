"""
Template Resolver - static dependency discovery for component templates.

This library walks Handlebars/Glimmer-style templates and reports which
component and helper modules each template depends on, without rendering
anything. Callers can bundle exactly what a template needs.
"""

from __future__ import annotations

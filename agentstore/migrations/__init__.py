"""Schema migration system for agentstore.

Tracks applied versions in the ``migrations`` table and applies pending
units in ascending order. Each unit is a module in this package named
``m_NNN_description.py`` that defines ``STATEMENTS``.
"""

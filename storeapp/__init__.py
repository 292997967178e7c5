"""
Materials Store Workspace
Client for project BOM allocation, stock registers and procurement approval
"""

__version__ = "1.0.0"

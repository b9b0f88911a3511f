"""
BladeForge command line interface.
"""

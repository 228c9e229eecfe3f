"""
memer/services/__init__.py
Economy engine services
"""

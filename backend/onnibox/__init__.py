"""
OnniBox: fleet cash reconciliation and financial management service
"""
__version__ = "1.2.0"

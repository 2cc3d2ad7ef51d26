"""
cfnupd - fetch, edit and update a live CloudFormation stack.
"""

__version__ = "0.1.0"

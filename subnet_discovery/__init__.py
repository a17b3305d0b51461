"""
Subnet Discovery Module

Finds live hosts and open TCP ports across a local IPv4 subnet and reconciles
them into host storage, one record per address.
"""

__version__ = "1.0.0"
__author__ = "Subnet Discovery Team"

"""
sgrlib: security group rule provisioning library.

Loads rule rows from CSV, resolves destination IPs to their security groups
and authorizes ingress/egress rules through the EC2 API.
"""

__version__ = "0.1.0"

"""
Cloudkeeper - Tag-driven lifecycle and compliance automation for AWS resources.

This package provides Lambda handlers, a CLI and a small REST API that
schedule, warn about and delete detached EBS volumes, and check EC2
instances for required tags.
"""

__version__ = "0.1.0"
__author__ = "Cloud Services Team"

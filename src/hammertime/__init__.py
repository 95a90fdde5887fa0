"""
Hammertime - AWS Auto Scaling Group pause/resume

Stops tagged Auto Scaling Groups outside business hours and restores
their recorded capacity when work starts again.
"""

__version__ = "0.1.0"
__author__ = "Hammertime Team"

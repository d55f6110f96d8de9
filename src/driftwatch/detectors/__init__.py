"""
Cloud provider drift detectors.
"""

from .aws_detector import AWSDetector
from .azure_detector import AzureDetector
from .base import Detector
from .gcp_detector import GCPDetector

__all__ = ["AWSDetector", "AzureDetector", "Detector", "GCPDetector"]

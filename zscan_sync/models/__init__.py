from .dataset import Dataset
from .scan_record import ScanRecord

__all__ = ["Dataset", "ScanRecord"]

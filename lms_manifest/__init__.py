'''Build aria2c download manifests from authenticated LMS course pages.'''

__version__ = "0.1.0"

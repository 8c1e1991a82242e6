"""dau: watch a directory and upload new images to a webhook."""

__version__ = "0.6.0"

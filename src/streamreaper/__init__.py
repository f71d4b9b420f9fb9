"""StreamReaper: find and delete Kinesis data streams across AWS regions."""

__version__ = "0.1.0"

"""DroidScope: storage and file introspection for an adb-attached Android device."""

__version__ = "0.1.0"

"""skiller version information."""

__version__ = "0.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Color, brightness, profile, polling rate and Windows-key control
#         over raw pyusb control transfers
# 0.2.0 - Config file for VID/PID/interface/timeout, HIDAPI feature-report
#         backend, find_keyboards() scan helper

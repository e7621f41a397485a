"""Release Selector.

Walks the published release history of a project and picks the release to
advertise as "latest" (newest non-prerelease) and the one to advertise as
"stable" (old enough, advertises fixes, and has no crash reports), then
publishes both as pointer files.
"""

__version__ = "0.1.0"

"""docdesk — authenticated document service.

Owner-scoped markdown documents behind a session authority, with one
shared data-access handle per process.
"""

__version__ = "0.1.0"

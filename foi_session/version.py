"""FOI Session Meta information.
   FOI Session keeps uploaded documents encrypted in a session-scoped cache.
"""
__title__ = 'foi_session'
__description__ = (
   'FOI Session keeps uploaded documents encrypted in a '
   'session-scoped cache with expiry and panic clear.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 FOI Redaction Tool Contributors'
__author__ = 'FOI Redaction Tool Contributors'
__author_email__ = 'foi-redaction@example.org'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/foi-redaction/foi-session'

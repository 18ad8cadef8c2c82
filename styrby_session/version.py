"""Styrby Session Meta information.
   Styrby Session encrypts agent session messages end-to-end
   before they are handed to the storage backend.
"""
__title__ = 'styrby_session'
__description__ = (
   'End-to-end encryption of agent session messages '
   'with per-session, per-device derived keys.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 Styrby'
__author__ = 'Styrby'
__author_email__ = 'dev@styrby.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/styrby/styrby-session'

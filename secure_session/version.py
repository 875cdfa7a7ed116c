"""Secure Session Meta information.
   Secure Session keeps encrypted, namespaced session state for web apps.
"""
__title__ = 'secure_session'
__description__ = (
   'Secure Session keeps encrypted, namespaced session state '
   'behind an opaque session id.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/secure-session'

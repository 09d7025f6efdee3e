"""Navigator KeyVault Meta information.
   Navigator KeyVault keeps small named secrets in a local,
   password-protected vault file.
"""
__title__ = 'navigator_keyvault'
__description__ = (
   'Navigator KeyVault keeps small named secrets (API keys, tokens) '
   'in a local, password-protected vault file.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-keyvault'

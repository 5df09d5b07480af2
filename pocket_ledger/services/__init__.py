"""
Services package.

storage  - key-value store interface, implementations and record store
identity - registration, sign-in and the session record
ledger   - per-user transaction list
"""

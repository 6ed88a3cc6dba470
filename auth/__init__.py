"""auth/ -- Accounts, credentials, tokens, and federated identity for Inkwell.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, blog/, or media/.
api/ imports from auth/, not the other way around.
"""

"""auth/ -- Authentication core for Chirpy.

Four independent pieces:
  passwords.py  Argon2id hashing and verification
  bearer.py     Authorization: Bearer header parsing
  tokens.py     stateless HS256 access tokens
  refresh.py    persisted, revocable refresh tokens (storage in store.py)

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""

"""Authentication and session management.

Learn: A session is a signed JWT used as a Redis key whose value is the
user id. The JWT's own claims are never checked again after issuance:
a token is valid exactly as long as its key exists in Redis.

1. Sign-in / registration → bcrypt check → TokenIssuer.issue → Redis SET
2. Protected request → Authorization header → Redis GET → user id
3. Sign-out → Redis DEL
"""

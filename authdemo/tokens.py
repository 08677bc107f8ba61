# tokens.py
#
# HS256 JSON Web Tokens for profiles.
#
#   JwtGenerator(secret).generate(profile) -> token
#   JwtAuthenticator(secret).validate(credentials) -> profile
#
# The token subject is the profile's typed id, so validating a token gives
# back a profile of the same class as the one it was generated from. Roles
# and permissions travel in the private "$int_roles" / "$int_perms" claims.

import time
import logging
import jwt

from .profiles import build_profile
from .clients.base import CredentialsError

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'
ROLES_CLAIM = '$int_roles'
PERMISSIONS_CLAIM = '$int_perms'
RESERVED_CLAIMS = ('sub', 'iat', 'exp', 'nbf', 'iss', 'aud', 'jti', ROLES_CLAIM, PERMISSIONS_CLAIM)

class JwtGenerator:
  def __init__(self, secret, expiration=None):
    if not secret:
      raise ValueError('JWT secret must not be blank')
    self.secret = secret
    self.expiration = expiration

  def generate(self, profile):
    now = int(time.time())
    claims = {key: value for key, value in profile.attributes.items() if key not in RESERVED_CLAIMS}
    claims['sub'] = profile.typed_id
    claims['iat'] = now
    if self.expiration:
      claims['exp'] = now + self.expiration
    if profile.roles:
      claims[ROLES_CLAIM] = sorted(profile.roles)
    if profile.permissions:
      claims[PERMISSIONS_CLAIM] = sorted(profile.permissions)
    return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

class JwtAuthenticator:
  def __init__(self, secret):
    if not secret:
      raise ValueError('JWT secret must not be blank')
    self.secret = secret

  def validate(self, credentials):
    try:
      claims = jwt.decode(
        credentials.token,
        self.secret,
        algorithms=[ALGORITHM],
        options={'require': ['sub']}
      )
    except jwt.InvalidTokenError as e:
      logger.info('Rejected JWT: %s', e)
      raise CredentialsError(f'Invalid JWT: {e}') from e
    try:
      profile = build_profile(str(claims['sub']), {
        key: value for key, value in claims.items() if key not in RESERVED_CLAIMS
      })
      profile.roles.update(claims.get(ROLES_CLAIM, ()))
      profile.permissions.update(claims.get(PERMISSIONS_CLAIM, ()))
    except (TypeError, ValueError) as e:
      logger.info('Rejected JWT claims: %s', e)
      raise CredentialsError(f'Invalid JWT claims: {e}') from e
    return profile

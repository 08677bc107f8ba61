# clients/oidc.py
#
# OpenID Connect client. Endpoints and signing keys come from the provider's
# discovery document (discovery_uri); Authlib handles discovery, state,
# nonce, the code exchange and ID token validation. The profile is built
# from the validated ID token claims, or from the userinfo endpoint when
# the token response did not include them.

import logging

from ..profiles import OidcProfile
from .base import CredentialsError
from .oauth import PROVIDER_ERRORS, OAuthClient

logger = logging.getLogger(__name__)

class OidcClient(OAuthClient):
  def __init__(self, client_id=None, secret=None, discovery_uri=None, scope='openid profile email',
               custom_params=None, name=None, **kwargs):
    super().__init__(client_id, secret, name, **kwargs)
    self.discovery_uri = discovery_uri
    self.scope = scope
    self.custom_params = dict(custom_params or {})

  def add_custom_param(self, key, value):
    self.custom_params[key] = value

  def registration(self):
    if not self.discovery_uri:
      raise ValueError(f'{self.name}: discovery URI is required')
    return {
      'server_metadata_url': self.discovery_uri,
      'client_kwargs': {'scope': self.scope},
    }

  def authorization_params(self):
    return dict(self.custom_params)

  def userinfo(self, token):
    try:
      return self.remote.userinfo(token=token)
    except PROVIDER_ERRORS as e:
      logger.warning('%s userinfo request failed: %s', self.name, e)
      raise CredentialsError(f'{self.name}: userinfo request failed: {e}') from e

  def get_user_profile(self, token):
    claims = token.get('userinfo')
    if not claims:
      claims = self.userinfo(token)
    if not claims or not claims.get('sub'):
      raise CredentialsError(f'{self.name}: no subject in ID token or userinfo')
    attributes = {k: v for k, v in dict(claims).items() if k != 'sub'}
    profile = OidcProfile(claims['sub'], attributes)
    logger.debug('OIDC login for %s (issuer %s)', profile.id, claims.get('iss'))
    return profile

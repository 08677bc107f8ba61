# clients/oauth.py
#
# OAuth clients for Facebook (OAuth 2.0), Twitter (OAuth 1.0a) and Strava
# (OAuth 2.0). The protocol work (authorization URL, state, token exchange,
# request signing) is done by Authlib's Flask integration; each client
# registers itself on the Auth object's authlib OAuth registry and only
# knows where to fetch its user profile.
#
# Flow:
#   redirect()            -> provider authorization page
#   get_credentials()     -> token dict exchanged at the callback, or None
#                            when the provider did not send back a code
#   get_user_profile(tok) -> provider profile API call with that token
#
# verify (CA bundle path, or True) applies to every call the authlib session
# makes. timeout applies to discovery, token exchange and profile calls of
# OAuth 2 sessions, and to profile calls only for Twitter (OAuth 1).

import logging
import requests
from authlib.common.errors import AuthlibBaseError
from flask import request

from ..profiles import FacebookProfile, StravaProfile, TwitterProfile
from .base import CredentialsError, IndirectClient

logger = logging.getLogger(__name__)

# Errors raised by authlib or requests while talking to a provider. ValueError
# covers bodies that are not JSON.
PROVIDER_ERRORS = (AuthlibBaseError, requests.RequestException, ValueError)

class OAuthClient(IndirectClient):
  """Common plumbing for clients backed by an authlib remote app."""

  # Query argument the provider sends back on success
  code_parameter = 'code'

  def __init__(self, key, secret, name=None, timeout=None, verify=True):
    super().__init__(name)
    self.key = key
    self.secret = secret
    self.timeout = timeout
    self.verify = verify
    self.remote = None

  def registration(self):
    raise NotImplementedError

  def session_kwargs(self):
    # Picked up by authlib's requests OAuth2Session
    return {'verify': self.verify, 'default_timeout': self.timeout}

  def init(self, auth):
    super().init(auth)
    registration = self.registration()
    client_kwargs = dict(registration.pop('client_kwargs', {}))
    client_kwargs.update(self.session_kwargs())
    self.remote = auth.oauth.register(
      self.name,
      client_id=self.key,
      client_secret=self.secret,
      client_kwargs=client_kwargs,
      **registration
    )

  def authorization_params(self):
    return {}

  def redirect(self):
    return self.remote.authorize_redirect(self.callback_url, **self.authorization_params())

  def get_credentials(self):
    if self.code_parameter not in request.args:
      error = request.args.get('error_description') or request.args.get('error')
      if error:
        raise CredentialsError(f'{self.name}: {error}')
      return None
    try:
      return self.remote.authorize_access_token()
    except PROVIDER_ERRORS as e:
      logger.warning('%s token exchange failed: %s', self.name, e)
      raise CredentialsError(f'{self.name} token exchange failed: {e}') from e

  def fetch(self, path, token, **kwargs):
    if self.timeout:
      kwargs.setdefault('timeout', self.timeout)
    try:
      resp = self.remote.get(path, token=token, **kwargs)
      if resp.status_code != 200:
        raise CredentialsError(f'{self.name}: failed to fetch user profile ({resp.status_code})')
      return resp.json()
    except PROVIDER_ERRORS as e:
      logger.warning('%s profile request failed: %s', self.name, e)
      raise CredentialsError(f'{self.name}: failed to fetch user profile: {e}') from e


class FacebookClient(OAuthClient):
  fields = 'id,name,first_name,middle_name,last_name,gender,locale,languages,link,email,timezone,verified'
  scope = 'email,public_profile'

  def registration(self):
    return {
      'api_base_url': 'https://graph.facebook.com/v2.12/',
      'access_token_url': 'https://graph.facebook.com/v2.12/oauth/access_token',
      'authorize_url': 'https://www.facebook.com/v2.12/dialog/oauth',
      'client_kwargs': {'scope': self.scope},
    }

  def get_user_profile(self, token):
    data = self.fetch('me', token, params={'fields': self.fields})
    return FacebookProfile(data.get('id'), {k: v for k, v in data.items() if k != 'id'})


class TwitterClient(OAuthClient):
  code_parameter = 'oauth_verifier'

  def session_kwargs(self):
    # OAuth1Session has no default timeout, fetch() passes it per request
    return {'verify': self.verify}

  def registration(self):
    return {
      'api_base_url': 'https://api.twitter.com/1.1/',
      'request_token_url': 'https://api.twitter.com/oauth/request_token',
      'access_token_url': 'https://api.twitter.com/oauth/access_token',
      'authorize_url': 'https://api.twitter.com/oauth/authenticate',
    }

  def get_user_profile(self, token):
    data = self.fetch('account/verify_credentials.json', token)
    attributes = {k: v for k, v in data.items() if k not in ('id', 'id_str', 'status')}
    return TwitterProfile(data.get('id_str') or data.get('id'), attributes)


class StravaClient(OAuthClient):
  def __init__(self, key=None, secret=None, scope='read', approval_prompt='auto', name=None, **kwargs):
    super().__init__(key, secret, name, **kwargs)
    self.scope = scope
    self.approval_prompt = approval_prompt

  def registration(self):
    return {
      'api_base_url': 'https://www.strava.com/api/v3/',
      'access_token_url': 'https://www.strava.com/oauth/token',
      'authorize_url': 'https://www.strava.com/oauth/authorize',
      'client_kwargs': {
        'scope': self.scope,
        'token_endpoint_auth_method': 'client_secret_post',
      },
    }

  def authorization_params(self):
    return {'approval_prompt': self.approval_prompt}

  def get_user_profile(self, token):
    data = self.fetch('athlete', token)
    return StravaProfile(data.get('id'), {k: v for k, v in data.items() if k != 'id'})

# clients/base.py
#
# Base classes shared by all authentication clients.
#
# A client knows one way of authenticating a user:
#   - DirectClient: the credentials are in the request itself (Basic header,
#     token parameter). The security filter asks it on every request.
#   - IndirectClient: the user is redirected somewhere (identity provider,
#     login form) and comes back to the callback route with credentials.
#
# In both cases get_credentials() pulls the credentials out of the current
# Flask request (None when there are none) and get_user_profile() turns them
# into a UserProfile, raising CredentialsError when they are rejected.

from collections import namedtuple
from flask import Response

UsernamePasswordCredentials = namedtuple('UsernamePasswordCredentials', ['username', 'password'])
TokenCredentials = namedtuple('TokenCredentials', ['token'])

class CredentialsError(Exception):
  """Raised when credentials are present but cannot be accepted."""


class Client:
  direct = False

  def __init__(self, name=None):
    self.name = name or type(self).__name__
    self.auth = None

  def init(self, auth):
    """Called once by Auth.init_app, before any request is served."""
    self.auth = auth

  def get_credentials(self):
    raise NotImplementedError

  def get_user_profile(self, credentials):
    raise NotImplementedError

  def unauthorized(self):
    return Response('Unauthorized', 401)

  def __repr__(self):
    return f'<{type(self).__name__} name={self.name!r}>'


class DirectClient(Client):
  direct = True


class IndirectClient(Client):
  @property
  def callback_url(self):
    return self.auth.callback_url(self)

  def redirect(self):
    raise NotImplementedError

  def on_failure(self, error=None):
    return self.unauthorized()


class AuthenticatorMixin:
  """Delegates profile creation to an authenticator with a validate() method."""

  def get_user_profile(self, credentials):
    return self.authenticator.validate(credentials)

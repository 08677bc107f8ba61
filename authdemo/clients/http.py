# clients/http.py
#
# Clients for credentials carried over plain HTTP:
#
#   FormClient               login form posted to the callback (indirect)
#   IndirectBasicAuthClient  Basic auth challenge at the callback (indirect)
#   DirectBasicAuthClient    Basic auth header on the protected request
#   ParameterClient          token in a query or form parameter (direct)
#
# plus SimpleTestUsernamePasswordAuthenticator, a test authenticator that
# accepts any user whose password equals the username.

import logging
from urllib.parse import urlencode
from flask import Response, redirect, request

from ..profiles import HttpProfile
from .base import (
  AuthenticatorMixin, CredentialsError, DirectClient, IndirectClient,
  TokenCredentials, UsernamePasswordCredentials,
)

logger = logging.getLogger(__name__)

DEFAULT_REALM = 'authentication required'

class SimpleTestUsernamePasswordAuthenticator:
  def validate(self, credentials):
    username = credentials.username
    if not username or not username.strip():
      raise CredentialsError('Username cannot be blank')
    if not credentials.password:
      raise CredentialsError('Password cannot be blank')
    if username != credentials.password:
      raise CredentialsError(f'Username: {username} does not match password')
    return HttpProfile(username, {'username': username})


def basic_credentials():
  auth = request.authorization
  if not auth or auth.type != 'basic' or auth.username is None:
    return None
  return UsernamePasswordCredentials(auth.username, auth.password or '')

def basic_challenge(realm=DEFAULT_REALM):
  return Response(
    'Unauthorized', 401,
    {'WWW-Authenticate': f'Basic realm="{realm}"'}
  )


class FormClient(AuthenticatorMixin, IndirectClient):
  username_parameter = 'username'
  password_parameter = 'password'

  def __init__(self, authenticator, login_url='/login', name=None):
    super().__init__(name)
    self.authenticator = authenticator
    self.login_url = login_url

  def redirect(self):
    return redirect(self.login_url)

  def get_credentials(self):
    username = request.form.get(self.username_parameter)
    password = request.form.get(self.password_parameter)
    if username is None or password is None:
      return None
    return UsernamePasswordCredentials(username, password)

  def on_failure(self, error=None):
    params = {'error': str(error) if error else 'Missing credentials'}
    username = request.form.get(self.username_parameter)
    if username:
      params['username'] = username
    return redirect(f'{self.login_url}?{urlencode(params)}')


class IndirectBasicAuthClient(AuthenticatorMixin, IndirectClient):
  def __init__(self, authenticator, realm=DEFAULT_REALM, name=None):
    super().__init__(name)
    self.authenticator = authenticator
    self.realm = realm

  def redirect(self):
    # The browser is challenged at the callback, not on the protected page
    return redirect(self.callback_url)

  def get_credentials(self):
    return basic_credentials()

  def unauthorized(self):
    return basic_challenge(self.realm)


class DirectBasicAuthClient(AuthenticatorMixin, DirectClient):
  def __init__(self, authenticator, realm=DEFAULT_REALM, name=None):
    super().__init__(name)
    self.authenticator = authenticator
    self.realm = realm

  def get_credentials(self):
    return basic_credentials()

  def unauthorized(self):
    return basic_challenge(self.realm)


class ParameterClient(AuthenticatorMixin, DirectClient):
  def __init__(self, parameter_name, authenticator, support_get=False, support_post=True, name=None):
    super().__init__(name)
    self.parameter_name = parameter_name
    self.authenticator = authenticator
    self.support_get = support_get
    self.support_post = support_post

  def get_credentials(self):
    if request.method == 'GET':
      if not self.support_get:
        return None
      value = request.args.get(self.parameter_name)
    elif request.method == 'POST':
      if not self.support_post:
        return None
      value = request.form.get(self.parameter_name)
    else:
      return None
    if not value:
      return None
    return TokenCredentials(value)

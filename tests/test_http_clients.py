import pytest
from flask import Flask

from authdemo.clients import (
  CredentialsError, DirectBasicAuthClient, ParameterClient,
  SimpleTestUsernamePasswordAuthenticator, TokenCredentials,
  UsernamePasswordCredentials,
)
from authdemo.profiles import HttpProfile
from conftest import basic_header

@pytest.fixture
def flask_app():
  return Flask(__name__)

def test_authenticator_accepts_password_equal_to_username():
  profile = SimpleTestUsernamePasswordAuthenticator().validate(UsernamePasswordCredentials('jle', 'jle'))
  assert isinstance(profile, HttpProfile)
  assert profile.id == 'jle'
  assert profile.username == 'jle'

@pytest.mark.parametrize('username,password', [
  ('jle', 'other'),
  ('', ''),
  ('   ', '   '),
  ('jle', ''),
])
def test_authenticator_rejects(username, password):
  with pytest.raises(CredentialsError):
    SimpleTestUsernamePasswordAuthenticator().validate(UsernamePasswordCredentials(username, password))

def test_basic_credentials_from_header(flask_app):
  client = DirectBasicAuthClient(SimpleTestUsernamePasswordAuthenticator())
  with flask_app.test_request_context('/direct', headers=basic_header('jle', 'secret')):
    assert client.get_credentials() == UsernamePasswordCredentials('jle', 'secret')
  with flask_app.test_request_context('/direct', headers={'Authorization': 'Bearer abc'}):
    assert client.get_credentials() is None
  with flask_app.test_request_context('/direct'):
    assert client.get_credentials() is None

def test_basic_challenge(flask_app):
  client = DirectBasicAuthClient(SimpleTestUsernamePasswordAuthenticator(), realm='demo')
  with flask_app.test_request_context('/direct'):
    resp = client.unauthorized()
  assert resp.status_code == 401
  assert resp.headers['WWW-Authenticate'] == 'Basic realm="demo"'

def test_parameter_client_methods(flask_app):
  client = ParameterClient('token', authenticator=None, support_get=True, support_post=False)
  with flask_app.test_request_context('/rest-jwt?token=abc'):
    assert client.get_credentials() == TokenCredentials('abc')
  with flask_app.test_request_context('/rest-jwt', method='POST', data={'token': 'abc'}):
    assert client.get_credentials() is None
  with flask_app.test_request_context('/rest-jwt?token='):
    assert client.get_credentials() is None

def test_parameter_client_post_only(flask_app):
  client = ParameterClient('token', authenticator=None)
  with flask_app.test_request_context('/rest-jwt?token=abc'):
    assert client.get_credentials() is None
  with flask_app.test_request_context('/rest-jwt', method='POST', data={'token': 'abc'}):
    assert client.get_credentials() == TokenCredentials('abc')

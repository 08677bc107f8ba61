import time
import jwt
import pytest

from authdemo.clients import CredentialsError, TokenCredentials
from authdemo.profiles import FacebookProfile, HttpProfile
from authdemo.tokens import JwtAuthenticator, JwtGenerator

SECRET = '12345678901234567890123456789012'

def test_generated_token_is_signed_with_subject():
  token = JwtGenerator(SECRET).generate(HttpProfile('jle', {'username': 'jle'}))
  claims = jwt.decode(token, SECRET, algorithms=['HS256'])
  assert claims['sub'] == 'HttpProfile#jle'
  assert claims['username'] == 'jle'
  assert 'iat' in claims

def test_validate_rebuilds_profile_of_same_class():
  profile = FacebookProfile('42', {'name': 'John Doe', 'email': 'jdoe@example.com'})
  profile.roles.add('ROLE_USER')
  token = JwtGenerator(SECRET).generate(profile)

  restored = JwtAuthenticator(SECRET).validate(TokenCredentials(token))
  assert isinstance(restored, FacebookProfile)
  assert restored.id == '42'
  assert restored.attributes == {'name': 'John Doe', 'email': 'jdoe@example.com'}
  assert restored.roles == {'ROLE_USER'}

def test_wrong_secret_is_rejected():
  token = JwtGenerator('another-secret-another-secret-xx').generate(HttpProfile('jle'))
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials(token))

def test_expired_token_is_rejected():
  token = jwt.encode({'sub': 'HttpProfile#jle', 'exp': int(time.time()) - 60}, SECRET, algorithm='HS256')
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials(token))

def test_token_without_subject_is_rejected():
  token = jwt.encode({'username': 'jle'}, SECRET, algorithm='HS256')
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials(token))

def test_garbage_is_rejected():
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials('not.a.jwt'))

@pytest.mark.parametrize('subject', ['HttpProfile#', ''])
def test_blank_subject_is_rejected(subject):
  token = jwt.encode({'sub': subject}, SECRET, algorithm='HS256')
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials(token))

def test_malformed_roles_are_rejected():
  token = jwt.encode({'sub': 'HttpProfile#jle', '$int_roles': 5}, SECRET, algorithm='HS256')
  with pytest.raises(CredentialsError):
    JwtAuthenticator(SECRET).validate(TokenCredentials(token))

def test_blank_secret():
  with pytest.raises(ValueError):
    JwtGenerator('')

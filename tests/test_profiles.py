import pytest

from authdemo.profiles import (
  CasProfile, HttpProfile, OidcProfile, SAML2Profile, UserProfile, build_profile,
)

def test_typed_id_and_client_name():
  profile = OidcProfile('1234', {'email': 'jdoe@example.com'})
  assert profile.typed_id == 'OidcProfile#1234'
  assert profile.client_name == 'Oidc'
  assert SAML2Profile('x').client_name == 'SAML2'

def test_blank_id_is_rejected():
  with pytest.raises(ValueError):
    UserProfile('')

def test_none_attributes_are_dropped():
  profile = HttpProfile('jle', {'username': 'jle', 'email': None})
  assert profile.attributes == {'username': 'jle'}

def test_accessors_read_list_values():
  profile = SAML2Profile('jdoe', {'uid': ['jdoe'], 'mail': ['jdoe@example.com'], 'displayName': ['John Doe']})
  assert profile.username == 'jdoe'
  assert profile.email == 'jdoe@example.com'
  assert profile.display_name == 'John Doe'

def test_display_name_falls_back_to_username():
  assert HttpProfile('jle', {'username': 'jle'}).display_name == 'jle'

def test_build_profile_restores_class():
  profile = build_profile('CasProfile#jdoe', {'email': 'jdoe@example.com'})
  assert isinstance(profile, CasProfile)
  assert profile.id == 'jdoe'
  assert profile.email == 'jdoe@example.com'

def test_build_profile_keeps_separator_in_id():
  profile = build_profile('HttpProfile#a#b')
  assert isinstance(profile, HttpProfile)
  assert profile.id == 'a#b'

def test_build_profile_unknown_class():
  profile = build_profile('NopeProfile#1')
  assert type(profile) is UserProfile
  assert profile.id == 'NopeProfile#1'
  assert type(build_profile('plain')) is UserProfile

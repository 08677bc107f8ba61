# profiles.py
#
# User profiles returned by the authentication clients. A profile is an id
# plus a dict of attributes (whatever the identity provider sent back), and
# optional roles and permissions.
#
# Each client produces its own profile class so the demo pages can show
# which client authenticated the user: the "client name" shown is the class
# name without the trailing "Profile" (OidcProfile -> Oidc).
#
# The typed id ("OidcProfile#1234") carries the class name so a profile can
# be rebuilt from a JWT or any other flat representation, see build_profile.

SEPARATOR = '#'

class UserProfile:
  def __init__(self, id, attributes=None, roles=None, permissions=None):
    if id is None or str(id) == '':
      raise ValueError('profile id must not be blank')
    self.id = str(id)
    self.attributes = {}
    self.roles = set(roles or ())
    self.permissions = set(permissions or ())
    self.add_attributes(attributes or {})

  @property
  def typed_id(self):
    return f'{type(self).__name__}{SEPARATOR}{self.id}'

  @property
  def client_name(self):
    name = type(self).__name__
    return name[:-len('Profile')] if name.endswith('Profile') else name

  def add_attribute(self, key, value):
    if value is not None:
      self.attributes[key] = value

  def add_attributes(self, attributes):
    for key, value in attributes.items():
      self.add_attribute(key, value)

  def get(self, key, default=None):
    return self.attributes.get(key, default)

  def _first(self, *keys):
    for key in keys:
      value = self.attributes.get(key)
      # SAML attribute values come as lists
      if isinstance(value, (list, tuple)):
        value = value[0] if value else None
      if value:
        return value
    return None

  @property
  def username(self):
    return self._first('username', 'preferred_username', 'screen_name', 'uid')

  @property
  def email(self):
    return self._first('email', 'mail', 'emailaddress')

  @property
  def first_name(self):
    return self._first('given_name', 'first_name', 'firstname', 'givenName')

  @property
  def family_name(self):
    return self._first('family_name', 'last_name', 'lastname', 'sn', 'surname')

  @property
  def display_name(self):
    return self._first('name', 'displayName', 'display_name') or self.username

  def __eq__(self, other):
    return type(self) is type(other) and self.id == other.id and self.attributes == other.attributes

  def __repr__(self):
    return f'<{type(self).__name__} id={self.id!r}>'


class HttpProfile(UserProfile):
  pass

class OidcProfile(UserProfile):
  pass

class SAML2Profile(UserProfile):
  pass

class FacebookProfile(UserProfile):
  pass

class TwitterProfile(UserProfile):
  pass

class StravaProfile(UserProfile):
  pass

class CasProfile(UserProfile):
  pass


PROFILE_CLASSES = {
  cls.__name__: cls for cls in (
    UserProfile,
    HttpProfile,
    OidcProfile,
    SAML2Profile,
    FacebookProfile,
    TwitterProfile,
    StravaProfile,
    CasProfile,
  )
}

def build_profile(typed_id, attributes=None):
  """
  Rebuilds a profile from its typed id. Ids without a known class prefix
  give a plain UserProfile carrying the whole id.
  """
  class_name, sep, id = typed_id.partition(SEPARATOR)
  cls = PROFILE_CLASSES.get(class_name) if sep else None
  if cls is None:
    return UserProfile(typed_id, attributes)
  return cls(id, attributes)

# security.py
#
# Route-based security for the Flask app.
#
# Auth keeps a table of URL patterns -> authentication clients. A
# before_request filter protects every path that matches a pattern:
#
#   1. a profile referenced by the session is accepted as is;
#   2. otherwise each direct client (Basic header, token parameter, ...) is
#      asked to authenticate the request itself. The profile id is then kept
#      on the request only (flask.g), not in the session;
#   3. otherwise the user is redirected by an indirect client (OIDC, SAML,
#      OAuth, CAS, form, ...). The client is chosen with the "client_name"
#      argument, or is the first one registered for the pattern;
#   4. with no indirect client, the answer is 401.
#
# Authorizers registered for a pattern then check the profile (403 on
# refusal).
#
# Indirect clients come back to the callback route, which stores the
# profile and puts its id in the session before returning to the page that
# was originally requested.
#
# Patterns use "*" for anything inside one path segment and "**" for any
# number of segments, including none: "/oidc/**" protects "/oidc" and
# everything below it.
#
# Example:
#
#   auth = Auth()
#   auth.client('/cas/**', lambda conf: CasClient(conf['CAS_LOGIN_URL']))
#   auth.form('/form/**')
#   auth.authorizer('admin', '/form/admin/**', lambda profile: profile.username == 'admin')
#   auth.init_app(app)

import logging
import re
from urllib.parse import urlencode
from authlib.integrations.flask_client import OAuth
from flask import Blueprint, abort, current_app, g, redirect, render_template, request, session

from .clients import (
  Client, CredentialsError, FormClient, IndirectBasicAuthClient,
  SimpleTestUsernamePasswordAuthenticator,
)
from .store import AuthStore

logger = logging.getLogger(__name__)

# Session key holding the typed id of the logged in user
AUTH_ID = 'authdemo.user_id'
# Session key holding the URL to go back to after the callback
REQUESTED_URL = 'authdemo.requested_url'

def compile_pattern(pattern):
  regex = '^'
  for part in pattern.strip('/').split('/'):
    if not part:
      continue
    if part == '**':
      regex += '(?:/.*)?'
    else:
      regex += '/' + re.escape(part).replace(r'\*', '[^/]*')
  return re.compile(regex + '/?$')


class PathRule:
  def __init__(self, pattern):
    self.pattern = pattern
    self.regex = compile_pattern(pattern)

  def matches(self, path):
    return self.regex.match(path) is not None


class Rule(PathRule):
  def __init__(self, pattern):
    super().__init__(pattern)
    self.providers = []
    self.clients = []


class Authorizer(PathRule):
  def __init__(self, name, pattern, check):
    super().__init__(pattern)
    self.name = name
    self.check = check


class Auth:
  def __init__(self, callback_path='/callback', login_path='/login', logout_path='/logout', default_url='/'):
    self.callback_path = callback_path
    self.login_path = login_path
    self.logout_path = logout_path
    self.default_url = default_url
    self.rules = []
    self.authorizers = []
    self.clients = {}
    self.store = AuthStore()
    self.oauth = None
    self.app = None

  def client(self, pattern, provider):
    """
    Protects pattern with a client. provider is either a Client or a
    callable taking the app config and returning one; several clients can
    be registered for the same pattern.
    """
    for rule in self.rules:
      if rule.pattern == pattern:
        break
    else:
      rule = Rule(pattern)
      self.rules.append(rule)
    rule.providers.append(provider)
    return self

  def form(self, pattern='/**'):
    return self.client(pattern, lambda conf: FormClient(
      SimpleTestUsernamePasswordAuthenticator(), login_url=self.login_path
    ))

  def basic(self, pattern='/**'):
    return self.client(pattern, lambda conf: IndirectBasicAuthClient(
      SimpleTestUsernamePasswordAuthenticator()
    ))

  def authorizer(self, name, pattern, check):
    self.authorizers.append(Authorizer(name, pattern, check))
    return self

  def init_app(self, app):
    self.app = app
    self.oauth = OAuth(app)
    for rule in self.rules:
      for provider in rule.providers:
        client = provider if isinstance(provider, Client) else provider(app.config)
        if not isinstance(client, Client):
          raise TypeError(f'{rule.pattern}: {client!r} is not an authentication client')
        if self.clients.get(client.name, client) is not client:
          raise ValueError(f'Duplicate client name: {client.name}')
        if client.name not in self.clients:
          self.clients[client.name] = client
          client.init(self)
        rule.clients.append(client)
      logger.info('%s protected by %s', rule.pattern, ', '.join(c.name for c in rule.clients))

    bp = Blueprint('auth', __name__)
    bp.add_url_rule(self.callback_path, 'callback', self.callback, methods=['GET', 'POST'])
    bp.add_url_rule(self.login_path, 'login', self.login)
    bp.add_url_rule(self.logout_path, 'logout', self.logout)
    app.register_blueprint(bp)
    app.before_request(self.secure)
    app.extensions['auth'] = self

  def callback_url(self, client):
    base = self.app.config.get('BASE_URL') or request.host_url
    return f'{base.rstrip("/")}{self.callback_path}?{urlencode({"client_name": client.name})}'

  def find_client(self, name):
    return self.clients.get(name)

  def clients_for(self, path):
    clients = []
    for rule in self.rules:
      if rule.matches(path):
        clients.extend(c for c in rule.clients if c not in clients)
    return clients

  # --- request handling ---

  def session_profile(self):
    profile_id = session.get(AUTH_ID)
    if profile_id is None:
      return None
    profile = self.store.get(profile_id)
    if profile is None:
      logger.info('Session refers to unknown profile %s, dropping it', profile_id)
      session.pop(AUTH_ID, None)
    return profile

  def current_profile(self):
    profile_id = g.get('auth_profile_id') or session.get(AUTH_ID)
    if profile_id is None:
      return None
    return self.store.get(profile_id)

  def secure(self):
    if request.path in (self.callback_path, self.login_path, self.logout_path):
      return None
    clients = self.clients_for(request.path)
    authorizers = [a for a in self.authorizers if a.matches(request.path)]
    if not clients and not authorizers:
      return None

    profile = None
    if clients:
      profile = self.session_profile()
      if profile is None:
        profile = self.authenticate_directly(clients)
      if profile is None:
        return self.challenge(clients)

    if authorizers:
      profile = profile or self.current_profile()
      if profile is None:
        abort(401)
      for authorizer in authorizers:
        if not authorizer.check(profile):
          logger.info('Authorizer %s refused %s on %s', authorizer.name, profile.typed_id, request.path)
          abort(403)
    return None

  def authenticate_directly(self, clients):
    for client in clients:
      if not client.direct:
        continue
      try:
        credentials = client.get_credentials()
        if credentials is None:
          continue
        profile = client.get_user_profile(credentials)
      except CredentialsError as e:
        logger.info('%s rejected credentials: %s', client.name, e)
        continue
      self.store.set(profile)
      g.auth_profile_id = profile.typed_id
      logger.debug('%s authenticated %s', client.name, profile.typed_id)
      return profile
    return None

  def challenge(self, clients):
    indirect = [c for c in clients if not c.direct]
    if indirect:
      wanted = request.args.get('client_name')
      client = next((c for c in indirect if c.name == wanted), indirect[0])
      session[REQUESTED_URL] = request.url
      logger.debug('Redirecting to %s for %s', client.name, request.path)
      return client.redirect()
    return clients[0].unauthorized()

  def callback(self):
    name = request.args.get('client_name') or request.form.get('client_name')
    if name:
      client = self.clients.get(name)
      if client is None or client.direct:
        abort(400, description=f'Unknown client: {name}')
    else:
      client = next((c for c in self.clients.values() if not c.direct), None)
      if client is None:
        abort(400, description='No client to handle the callback')

    try:
      credentials = client.get_credentials()
      if credentials is None:
        logger.info('%s: no credentials at callback', client.name)
        return client.on_failure()
      profile = client.get_user_profile(credentials)
    except CredentialsError as e:
      logger.info('%s: authentication failed: %s', client.name, e)
      return client.on_failure(e)

    self.store.set(profile)
    session.permanent = True
    session[AUTH_ID] = profile.typed_id
    logger.info('%s authenticated %s', client.name, profile.typed_id)
    return redirect(session.pop(REQUESTED_URL, None) or self.default_url)

  def login(self):
    client = next((c for c in self.clients.values() if isinstance(c, FormClient)), None)
    if client is None:
      abort(404)
    return render_template(
      'login.html',
      action=client.callback_url,
      error=request.args.get('error'),
      username=request.args.get('username', '')
    )

  def logout(self):
    profile_id = session.get(AUTH_ID)
    if profile_id:
      self.store.unset(profile_id)
    session.clear()
    url = request.args.get('url')
    # Only local paths, no open redirect
    if not url or not url.startswith('/') or url.startswith('//'):
      url = self.default_url
    return redirect(url)


def get_user_profile():
  """
  Returns the authenticated profile or aborts with 401. The id is looked up
  on the request first (direct clients) and then in the session (indirect
  clients).
  """
  auth = current_app.extensions['auth']
  profile = auth.current_profile()
  if profile is None:
    abort(401)
  return profile

def is_logged_in():
  return session.get(AUTH_ID) is not None

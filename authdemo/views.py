# views.py
#
# Demo pages. Every page that shows a profile uses the same handler: the
# security filter has already authenticated the user for the protected
# prefixes, the handler only looks the profile up (401 when there is none)
# and renders it.

from flask import Blueprint, abort, current_app, g, render_template

from .security import get_user_profile, is_logged_in
from .tokens import JwtGenerator

bp = Blueprint('views', __name__)

PROFILE_PATHS = (
  '/profile',
  '/oidc',
  '/saml2',
  '/facebook',
  '/twitter',
  '/form',
  '/form/admin',
  '/basic',
  '/cas',
  '/strava',
  '/rest-jwt',
  '/direct',
)

@bp.before_app_request
def set_logged_in():
  g.logged_in = is_logged_in()

@bp.app_context_processor
def inject_logged_in():
  return {'logged_in': g.get('logged_in', False)}

@bp.route('/')
def index():
  return render_template('index.html')

@bp.route('/generate-token')
def generate_token():
  profile = get_user_profile()
  token = JwtGenerator(current_app.config['JWT_SALT']).generate(profile)
  return render_template('index.html', token=token)

def show_profile():
  profile = get_user_profile()
  return render_template('profile.html', client=profile.client_name, profile=profile)

for path in PROFILE_PATHS:
  bp.add_url_rule(path, path.strip('/').replace('/', '_').replace('-', '_'), show_profile)

@bp.route('/saml2-metadata')
def saml2_metadata():
  client = current_app.extensions['auth'].find_client('SAML2Client')
  if client is None:
    abort(404)
  return client.metadata(), 200, {'Content-Type': 'application/xml'}

@bp.app_errorhandler(401)
@bp.app_errorhandler(403)
def http_error(e):
  return render_template('error.html', error=e), e.code

# store.py
#
# In-memory profile store. The session only keeps the typed id of the
# authenticated user; the profile itself lives here, like the in-memory
# user maps of the other demo servers. Profiles are lost on restart, and
# a session pointing at a missing profile is treated as logged out.

import threading

class AuthStore:
  def __init__(self):
    self._profiles = {}
    self._lock = threading.Lock()

  def get(self, profile_id):
    with self._lock:
      return self._profiles.get(profile_id)

  def set(self, profile):
    with self._lock:
      self._profiles[profile.typed_id] = profile

  def unset(self, profile_id):
    with self._lock:
      return self._profiles.pop(profile_id, None)

  def __len__(self):
    with self._lock:
      return len(self._profiles)

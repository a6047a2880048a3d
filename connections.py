class ConnectionRegistry:
    """Two-way map between user ids and live connection handles.

    A user id has at most one handle. Registering an id that is already
    mapped replaces the old handle silently (last register wins); the old
    handle is returned so the caller can decide what to do with it.
    """

    def __init__(self):
        self._users = {}    # user_id -> handle
        self._handles = {}  # handle -> user_id

    def __len__(self):
        return len(self._users)

    def __contains__(self, user_id):
        return user_id in self._users

    def register(self, user_id, handle):
        """Map ``user_id`` to ``handle``; return the handle it replaced, if any."""
        previous = self._users.get(user_id)

        # the handle may have been registered under another id before
        old_user = self._handles.get(handle)
        if old_user is not None and old_user != user_id and self._users.get(old_user) == handle:
            del self._users[old_user]

        if previous is not None and previous != handle:
            self._handles.pop(previous, None)

        self._users[user_id] = handle
        self._handles[handle] = user_id
        return previous if previous != handle else None

    def resolve(self, user_id):
        return self._users.get(user_id)

    def user_of(self, handle):
        return self._handles.get(handle)

    def unregister(self, handle):
        """Forget ``handle``; return the user id it was registered as, or None."""
        user_id = self._handles.pop(handle, None)
        if user_id is not None and self._users.get(user_id) == handle:
            del self._users[user_id]
        return user_id

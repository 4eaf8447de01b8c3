"""
Client core of the clinic mobile app.

Everything a screen needs that is not layout: the API client, typed
records decoded at the API boundary, the appointment status model, the
derived appointment views, the completion and edit workflows and the
per-screen state containers.
"""

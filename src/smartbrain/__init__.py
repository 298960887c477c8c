"""Smart Brain — backend for the face-detection web app.

User registration, session-based sign-in backed by Redis, profile
read/update, and a proxy to the Clarifai face-detection model.
"""

__version__ = "0.1.0"

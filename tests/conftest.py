import os

# Must be set before etce_auth is imported: settings and the engine are built at import time.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_DELIVERY"] = "queue"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_FROM_EMAIL", None)

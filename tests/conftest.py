import os

# Console logging only while testing; must run before utils.logger is imported.
os.environ.setdefault("INTEGRATE_LOG_FILE", "0")

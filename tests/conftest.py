import os

# Set environment variables for tests immediately to support module-level imports
os.environ.setdefault("TABLE_SERVICE_URL", "http://127.0.0.1:10002")
os.environ.setdefault("GROUPS_TABLE", "test-groups")
os.environ.setdefault("EXPENSES_TABLE", "test-expenses")
os.environ.setdefault("AzureWebJobsStorage", "UseDevelopmentStorage=true")
os.environ.setdefault("FUNCTIONS_WORKER_RUNTIME", "python")

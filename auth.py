"""
Google Earth Engine authentication module.
Logs in with a service account or cached user credentials and initializes
the client before any stack is requested.
"""

import ee
import os


# Path to service account JSON key file (unset for interactive auth)
SERVICE_ACCOUNT_KEY_FILE = os.environ.get("GEE_KEY_FILE")

# Service account email (read from the key file when unset)
SERVICE_ACCOUNT_EMAIL = os.environ.get("GEE_SERVICE_ACCOUNT")

# Cloud project that owns the export tasks
DEFAULT_PROJECT_ID = os.environ.get("GEE_PROJECT")


def authenticate_with_service_account(
    key_file: str,
    service_account_email: str = None,
    project_id: str = None
) -> bool:
    """
    Initialize Earth Engine with service account credentials.

    Used on servers and CI where no browser is available.

    Args:
        key_file: Path to the service account JSON key file.
        service_account_email: Account email. If None, taken from the key file.
        project_id: Cloud project ID.

    Returns:
        bool: True if initialization succeeded.
    """
    try:
        credentials = ee.ServiceAccountCredentials(service_account_email, key_file)
        ee.Initialize(credentials, project=project_id)
    except (ee.EEException, ValueError, OSError) as e:
        print(f"✗ Service account initialization failed: {e}")
        return False

    print(f"✓ Initialized with service account (project: {project_id or 'default'})")
    return True


def authenticate_interactive(project_id: str = None) -> bool:
    """
    Initialize Earth Engine with user credentials.

    The first run opens the OAuth flow; later runs reuse cached credentials.
    """
    try:
        ee.Authenticate()
        ee.Initialize(project=project_id)
    except ee.EEException as e:
        print(f"✗ GEE initialization failed: {e}")
        print("\nMake sure you have:")
        print("  1. Authenticated with: earthengine authenticate")
        print("  2. A Google Cloud project registered for Earth Engine")
        return False

    print(f"✓ GEE initialized (project: {project_id or 'default'})")
    return True


def check_gee_connection() -> bool:
    """Run a trivial server-side computation to verify the connection."""
    try:
        result = ee.Number(1).add(1).getInfo()
    except ee.EEException as e:
        print(f"✗ GEE connection test failed: {e}")
        return False

    if result != 2:
        print(f"✗ GEE connection test returned unexpected result: {result}")
        return False

    print("✓ GEE connection verified")
    return True


def setup_gee(project_id: str = None, key_file: str = None) -> bool:
    """
    Authenticate, initialize and verify the Earth Engine client.

    Args:
        project_id: Cloud project ID. Defaults to GEE_PROJECT.
        key_file: Service account key file. Defaults to GEE_KEY_FILE; when it
                 does not exist the interactive flow is used.

    Returns:
        bool: True if the client is ready to use.
    """
    print("Setting up Google Earth Engine...")
    print("-" * 40)

    project_id = project_id or DEFAULT_PROJECT_ID
    key_file = key_file or SERVICE_ACCOUNT_KEY_FILE

    if key_file and os.path.exists(key_file):
        print(f"Using service account key: {key_file}")
        ready = authenticate_with_service_account(key_file, SERVICE_ACCOUNT_EMAIL, project_id)
    else:
        ready = authenticate_interactive(project_id)

    if not ready or not check_gee_connection():
        return False

    print("-" * 40)
    print("✓ GEE setup complete\n")
    return True


if __name__ == "__main__":
    setup_gee()

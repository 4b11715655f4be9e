# Example: pySolarNetwork Control Toggler Demo
# ---------------------------------------------
# This script demonstrates how to toggle a SolarNode control using the pySolarNetwork library.
#
# Usage:
#   - Use a .env file or environment variables to set:
#       SN_TOKEN, SN_SECRET, SN_HOST, SN_NODE_ID, SN_CONTROL_ID
#   - Run: python example.py
#
# The control is polled for 60 seconds after asking the node to flip its value.

import os
import time

import dotenv

import pysolarnetwork  # noqa: F401
from pysolarnetwork import AuthorizationV2Builder, ControlToggler, Environment, SolarUserApi
from pysolarnetwork.tool.control_toggler import values_equal

# Load environment variables from .env file if present
dotenv.load_dotenv()

# Enable debug logging for more verbose output (optional for learning)
# pysolarnetwork.set_debug(True)

token = os.getenv('SN_TOKEN', 'my-token-id')
secret = os.getenv('SN_SECRET', 'my-token-secret')
host = os.getenv('SN_HOST', 'data.solarnetwork.net')
node_id = int(os.getenv('SN_NODE_ID', '123'))
control_id = os.getenv('SN_CONTROL_ID', '/power/switch/1')

# The token secret is only needed to derive the signing key
auth = AuthorizationV2Builder(token, Environment(host)).save_signing_key(secret)
print(f"Signing key valid until {auth.signing_key_expiration_date}")

toggler = ControlToggler(SolarUserApi(auth.environment), auth, node_id, control_id)


def changed(error):
    if error:
        print(f"ERROR: {error}")
        return
    pending = " (change pending)" if toggler.has_pending_state_change else ""
    print(f"{control_id} = {toggler.value()}{pending}")


toggler.callback = changed

# Get the current value, then ask the node to flip it
current = toggler.update()
desired = 0 if values_equal(current, 1) else 1
print(f"Setting {control_id} to {desired}")
toggler.value(desired)

toggler.start()
try:
    time.sleep(60)
finally:
    toggler.stop()

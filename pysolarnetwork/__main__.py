# pySolarNetwork Module - Command Line
# -*- coding: utf-8 -*-
"""
 Python module to interface with the SolarNetwork API

 Command line functions:
    python -m pysolarnetwork <sign|get|set|version>

 Credentials are read from the SN_TOKEN and SN_SECRET environment variables
 (a .env file is loaded if present). SN_HOST, SN_NODE_ID and SN_CONTROL_ID
 provide defaults for the host, node and control options.
"""

import argparse
import os
import sys
import time

import dotenv

# Modules
from pysolarnetwork import version, set_debug

# Load environment variables from .env file if present
dotenv.load_dotenv()

# Global Variables
token = os.getenv("SN_TOKEN", "")
secret = os.getenv("SN_SECRET", "")
host = os.getenv("SN_HOST", "")
node_id = os.getenv("SN_NODE_ID")
control_id = os.getenv("SN_CONTROL_ID")
wait = 60

# Setup parser and groups
p = argparse.ArgumentParser(prog="PySolarNetwork", description=f"PySolarNetwork Module v{version}")
subparsers = p.add_subparsers(dest="command", title='commands (run <command> -h to see usage information)',
                              required=True)

sign_args = subparsers.add_parser("sign", help='Print SNWS2 authorization headers for a URL')
sign_args.add_argument("-url", type=str, required=True, help="The URL to sign.")
sign_args.add_argument("-method", type=str, default="GET", help="HTTP method [Default=GET]")

get_args = subparsers.add_parser("get", help='Get the current value of a node control')
get_args.add_argument("-node", type=int, default=node_id, help="Node ID [Default=SN_NODE_ID]")
get_args.add_argument("-control", type=str, default=control_id, help="Control ID [Default=SN_CONTROL_ID]")

set_args = subparsers.add_parser("set", help='Set the value of a node control')
set_args.add_argument("-node", type=int, default=node_id, help="Node ID [Default=SN_NODE_ID]")
set_args.add_argument("-control", type=str, default=control_id, help="Control ID [Default=SN_CONTROL_ID]")
set_args.add_argument("-value", type=str, required=True, help="The desired control value")
set_args.add_argument("-wait", type=int, default=wait,
                      help=f"Seconds to wait for the node to apply the change [Default={wait}]")

version_args = subparsers.add_parser("version", help='Print version information')

# Add global flags
p.add_argument("-host", type=str, default=host, help="SolarNetwork host [Default=SN_HOST or data.solarnetwork.net]")
p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")

if len(sys.argv) == 1:
    p.print_help(sys.stderr)
    sys.exit(1)

# parse args
args = p.parse_args()
command = args.command

# Set Debug Mode
if args.debug:
    set_debug(True)


def create_auth():
    from pysolarnetwork import AuthorizationV2Builder, Environment

    if not token or not secret:
        print("ERROR: Set the SN_TOKEN and SN_SECRET environment variables.")
        sys.exit(1)
    auth = AuthorizationV2Builder(token, Environment(args.host or None))
    return auth.save_signing_key(secret)


def create_toggler():
    from pysolarnetwork import ControlToggler, SolarUserApi

    if not args.node or not args.control:
        print("ERROR: Node and control IDs are required (-node, -control).")
        sys.exit(1)
    auth = create_auth()
    return ControlToggler(SolarUserApi(auth.environment), auth, args.node, args.control)


# Sign URL
if command == 'sign':
    auth = create_auth()
    signed = auth.method(args.method.upper()).sn_date(True).url(args.url).request()
    for name, value in signed.headers.items():
        print(f"{name}: {value}")

# Get Control Value
elif command == 'get':
    toggler = create_toggler()
    value = toggler.update()
    print(f"{toggler.control_id} = {value}")
    if toggler.has_pending_state_change:
        instruction = toggler.last_known_instruction
        print(f"Pending instruction {instruction.id} [{instruction.instruction_state.value}] "
              f"value = {instruction.first_parameter_value}")

# Set Control Value
elif command == 'set':
    toggler = create_toggler()
    errors = []
    toggler.callback = lambda error: errors.append(error) if error else None
    toggler.update()
    if errors:
        print(f"ERROR: {errors[-1]}")
        sys.exit(1)
    instruction = toggler.value(args.value)
    if errors:
        print(f"ERROR: {errors[-1]}")
        sys.exit(1)
    if instruction is None or not toggler.has_pending_state_change:
        print(f"{toggler.control_id} = {toggler.value()}")
        sys.exit(0)
    print(f"Queued instruction {instruction.id} to set {toggler.control_id} to {args.value}")
    deadline = time.time() + args.wait
    while toggler.has_pending_state_change and time.time() < deadline:
        time.sleep(toggler.pending_refresh_ms / 1000.0)
        toggler.update()
    if toggler.has_pending_state_change:
        print(f"Instruction still {toggler.last_known_instruction.instruction_state.value} "
              f"after {args.wait} seconds")
        sys.exit(1)
    print(f"{toggler.control_id} = {toggler.value()}")

# Print Version
elif command == 'version':
    print("pySolarNetwork [%s]" % version)

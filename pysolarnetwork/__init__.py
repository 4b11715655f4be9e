# pySolarNetwork Module
# -*- coding: utf-8 -*-
"""
 Python module to interface with the SolarNetwork API

 For more information see https://github.com/SolarNetwork

 Features
    * Signs SolarNetwork API requests with SNWS2 token authorization
    * Saves the derived signing key so the token secret need not be kept
    * Builds SolarUser instruction and SolarQuery datum URLs
    * Sends JSON API requests with re-used http connections
    * Manages a SolarNode control value through the instruction queue (ControlToggler)

 Classes
    AuthorizationV2Builder(token_id, environment)
    Environment(host, protocol, port, proxy_url_prefix)
    SolarUserApi(environment)
    SolarQueryApi(environment)
    JsonClient(timeout, poolmaxsize, session)
    ControlToggler(api, auth, node_id, control_id, query_api, client, logger)

 Functions
    set_debug(toggle, color)  # Enable verbose logging

 Requirements
    This module requires the following modules: requests, python-dateutil, python-dotenv
"""
import logging
import sys

version_tuple = (0, 1, 0)
version = __version__ = '%d.%d.%d' % version_tuple
__author__ = 'solarnetwork'

from pysolarnetwork.exceptions import (SolarNetworkException, InvalidConfigurationParameter,
                                       SigningKeyError, SolarNetworkApiError)
from pysolarnetwork.net.environment import Environment
from pysolarnetwork.net.auth_v2 import AuthorizationV2Builder, SignedRequest
from pysolarnetwork.net.url_helper import SolarQueryApi, SolarUserApi
from pysolarnetwork.net.json_client import JsonClient
from pysolarnetwork.tool.control_toggler import ControlToggler, TogglerState

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)

"""WeChat mini-program login and stateless bearer-token authentication.

Exchanges ``wx.login`` codes for provider identities, registers users on
first login, issues signed tokens and authenticates later requests from
those tokens alone.
"""

__version__ = "0.1.0"

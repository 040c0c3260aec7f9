"""SSLContext factory for TLS syslog receivers."""

import ssl


def create_client_context(verify: bool, ca_file: str = "") -> ssl.SSLContext:
    """Build the client context used by the TLS dial hook.

    With ``verify`` the receiver's certificate and hostname are checked
    against ``ca_file``, or the system trust store when no file is given.
    Without it nothing is checked (dev receivers with self-signed certs).
    TLS 1.2 is the floor either way.
    """
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    if not verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    if ca_file:
        ctx.load_verify_locations(ca_file)
    else:
        ctx.load_default_certs()
    return ctx

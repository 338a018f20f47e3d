"""
Conference paper submission portal.

Authors register and confirm their e-mail address with a one-time code, then
submit, update and withdraw papers. A single administrator, identified by
the configured ``ADMIN_EMAIL``, reviews papers and sets their status. Token
pairs (access and refresh) are issued on verification and login, and
delivered both in the response body and as cookies.
"""

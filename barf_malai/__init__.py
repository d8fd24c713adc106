"""
                Barf Malai Ordering

Menu, cart and checkout client for a small ice cream parlor, plus the
admin dashboard, both backed by a spreadsheet web app.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"

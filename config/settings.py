"""
Comet Cupboard - Centralized Configuration
===========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./comet_cupboard.db")


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Week boundaries and pickup times are read in the pantry's wall clock
PANTRY_TIMEZONE = os.getenv("PANTRY_TIMEZONE", "America/Chicago")


# ==========================================
# 🛒 Cart
# ==========================================
GLOBAL_CART_LIMIT = 5


# ==========================================
# 📦 Pickup
# ==========================================
PICKUP_GRACE_MINUTES = 30
PICKUP_SWEEP_SECONDS = int(os.getenv("PICKUP_SWEEP_SECONDS", "60"))

# Daily slots: 12:00 PM to 4:30 PM every 30 minutes
PICKUP_FIRST_SLOT = "12:00"
PICKUP_LAST_SLOT = "16:30"
PICKUP_SLOT_MINUTES = 30

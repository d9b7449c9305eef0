# Models are stored in Firebase Firestore, not Django DB.
# This file is kept for Django app structure compatibility.
#
# Firestore Collections:
# - users/{uid}: Profile, role (buyer/seller), seller business fields
# - products/{id}: Seller products keyed by productCode
# - returns/{id}: Return requests (pending/approved/rejected)
# - notifications/{id}: Per-user inbox entries with a read flag
# - pushTokens/{id}: Expo push token per user
#
# See firebase_service.py for Firestore operations.

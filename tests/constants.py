from __future__ import annotations

REFERENCE_LINE = "IN001,Freelance Work,25/07/2025,10000.00,1000.00"
REFERENCE_CHECKSUM = 30

CONSULTING_LINE = "SA002,Consulting,26/07/2025,15000.00,1500.00"
CONSULTING_CHECKSUM = 29

RENTAL_LINE = "RE003,Rental Income,01/08/2025,250000.00,20000.00"
RENTAL_CHECKSUM = 32

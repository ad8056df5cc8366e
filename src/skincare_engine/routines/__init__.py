"""
Routine layer (Skincare Engine)

Monthly and weekly routines derived once per period from the recommendation
payload, plus the weekly check-in log:
  monthly_routines, weekly_routines, weekly_routine_checks
"""

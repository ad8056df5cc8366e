"""
Recommendation layer (Skincare Engine)

Rule-based selection of catalog items for the prioritized needs of one
analysis session. The payload built here is also the input of the routine
layer, so both stay on the same need scores:
  analysis_sessions, photos, ox_responses, profile_ox_records, products
"""

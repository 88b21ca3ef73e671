"""RideData: elevation profiles, DEM comparison and climb totals for activity recordings."""

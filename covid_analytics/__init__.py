"""COVID-19 case, death and vaccination exploration queries."""

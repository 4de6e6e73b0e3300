"""Collector base classes, the collector registry and the PMC, GNSS and DPLL filesystem collectors."""
"""Detection engine: registry, matcher, scorer, classifier and facade.

Data flows one way: text -> matcher -> candidates -> scorer -> classifier -> alerts.
"""

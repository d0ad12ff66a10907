"""Result payload records for variants that pass a query."""
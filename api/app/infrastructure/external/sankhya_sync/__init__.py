"""
Pipeline de sincronización one-way: Sankhya (CabecalhoNota) -> PostgreSQL.

Este paquete está diseñado para ejecutarse como job (cron / task scheduler)
o detrás del endpoint /sync, siempre en un thread aparte del event loop.

Objetivos de diseño:
- Snapshot completo: Sankhya no ofrece delta, cada corrida trae todo.
- Idempotencia: se puede ejecutar N veces; la segunda corrida solo actualiza.
- Soft delete: lo que no vino en el snapshot queda sankhya_atual='N', nunca se borra.
- Paginación reanudable ante vencimiento de token, reintentos acotados ante fallas de red.
"""

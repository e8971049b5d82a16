"""数据访问层: 仅负责 Query 组装与读取,不提交事务."""
